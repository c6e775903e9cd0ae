from delphi_api.core.associations import (
    PROTOCOL_TASK_DOMAINS,
    PROTOCOL_TASK_SENSORS,
    copy_default_associations,
)
from delphi_api.core.ordering import PROTOCOL_TASKS, OrderingEngine
from delphi_api.db.models import ProtocolTaskDomain, ProtocolTaskSensor


def test_copy_is_idempotent(db, protocol, make_task, make_sensor):
    task = make_task("Walk", sensors=[make_sensor("HR"), make_sensor("EDA")])
    result = OrderingEngine(db, PROTOCOL_TASKS).insert_at_position(protocol.id, task.id)

    again = copy_default_associations(db, result.membership_id, task.id, PROTOCOL_TASK_SENSORS)
    db.commit()

    assert again == 0
    assert db.query(ProtocolTaskSensor).filter_by(protocol_task_id=result.membership_id).count() == 2


def test_copy_picks_up_defaults_added_later(db, protocol, make_task, make_domain):
    task = make_task("Walk")
    result = OrderingEngine(db, PROTOCOL_TASKS).insert_at_position(protocol.id, task.id)
    assert result.copied == {"sensors": 0, "domains": 0}

    from delphi_api.db.models import TaskDomain
    db.add(TaskDomain(task_id=task.id, domain_id=make_domain("Stress").id))
    db.commit()

    copied = copy_default_associations(db, result.membership_id, task.id, PROTOCOL_TASK_DOMAINS)
    db.commit()

    assert copied == 1
    assert db.query(ProtocolTaskDomain).filter_by(protocol_task_id=result.membership_id).count() == 1


def test_membership_copies_are_independent_of_task_defaults(db, protocol, make_task, make_sensor):
    from delphi_api.db.models import TaskSensor

    sensor = make_sensor()
    task = make_task("Walk", sensors=[sensor])
    result = OrderingEngine(db, PROTOCOL_TASKS).insert_at_position(protocol.id, task.id)

    db.query(TaskSensor).filter_by(task_id=task.id).delete()
    db.commit()

    assert db.query(ProtocolTaskSensor).filter_by(protocol_task_id=result.membership_id).count() == 1
