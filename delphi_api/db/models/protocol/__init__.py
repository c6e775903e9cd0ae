# delphi_api/db/models/protocol/__init__.py
from .protocol import Protocol
from .protocol_task import ProtocolTask, ProtocolTaskSensor, ProtocolTaskDomain
from .section import Section
from .subsection import Subsection, SubsectionSensor
from .section_subsection import SectionSubsection, SectionSubsectionSensor
from .protocol_section import ProtocolSection
