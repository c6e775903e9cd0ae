from delphi_api.core.ordering import PROTOCOL_TASKS, OrderingEngine
from delphi_api.db.models import Sensor, Task
from delphi_api.db.seed import SENSORS, TASKS, TEMPLATE_ID, TEMPLATE_TASKS, seed_catalogue, seed_template


def test_seed_catalogue_is_repeatable(db):
    seed_catalogue(db)
    seed_catalogue(db)

    assert db.query(Sensor).count() == len(SENSORS)
    assert db.query(Task).filter(Task.is_custom.is_(False)).count() == len(TASKS)


def test_seed_template_orders_tasks(db, user):
    seed_catalogue(db)
    seed_template(db, user.id)
    seed_template(db, user.id)

    records = OrderingEngine(db, PROTOCOL_TASKS).list_memberships(TEMPLATE_ID)

    assert [r.child_id for r in records] == [task_id for task_id, _ in TEMPLATE_TASKS]
    assert [r.order_index for r in records] == list(range(len(TEMPLATE_TASKS)))
