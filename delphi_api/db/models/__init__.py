# delphi_api/db/models/__init__.py
from .user import User
from .access_token import AccessToken
from .sensor import Sensor
from .domain import Domain
from .task import Task
from .task_association import TaskSensor, TaskDomain
from .protocol import *
