"""Default catalogue rows (sensors, domains, tasks, subsections, sections)."""
import logging

from sqlalchemy.orm import Session

from delphi_api.core.ordering import PROTOCOL_TASKS, OrderingEngine
from delphi_api.db.models import Domain, Sensor, Task, TaskDomain, TaskSensor
from delphi_api.db.models.protocol import Protocol, Section, Subsection
from delphi_api.db.session import atomic

logger = logging.getLogger(__name__)

SENSORS = [
    ("sensor-001", "Heart Rate Monitor", "Cardiovascular", "Monitors heart rate in beats per minute"),
    ("sensor-002", "Temperature Sensor", "Environmental", "Measures ambient or body temperature"),
    ("sensor-003", "Accelerometer", "Motion", "Detects acceleration and movement patterns"),
    ("sensor-004", "EEG", "Neurological", "Electroencephalography for brain activity"),
    ("sensor-005", "EMG", "Muscular", "Electromyography for muscle activity"),
    ("sensor-006", "Blood Pressure Monitor", "Cardiovascular", "Measures systolic and diastolic pressure"),
    ("sensor-007", "Glucose Monitor", "Metabolic", "Monitors blood glucose levels"),
    ("sensor-008", "Pulse Oximeter", "Respiratory", "Measures oxygen saturation in blood"),
    ("sensor-009", "Gyroscope", "Motion", "Detects rotational movement and orientation"),
    ("sensor-010", "GPS", "Location", "Global positioning and movement tracking"),
]

DOMAINS = [
    ("domain-001", "Preparation", "Pre-task setup and warm-up activities"),
    ("domain-002", "Exercise", "Main activity and workload tasks"),
    ("domain-003", "Recovery", "Post-task cooldown and relaxation"),
    ("domain-004", "Assessment", "Measurement and evaluation tasks"),
    ("domain-005", "Break", "Rest periods and intermissions"),
]

# (id, title, minutes, description, type)
TASKS = [
    ("task-001", "Warm-up", 5, "Initial preparation phase to ready the body", "task"),
    ("task-002", "Rest Period", 3, "Recovery break between activities", "break"),
    ("task-003", "Baseline Measurement", 2, "Initial readings and assessments", "task"),
    ("task-004", "Cool Down", 10, "Final relaxation phase", "task"),
    ("task-005", "Main Exercise", 20, "Primary workout or activity phase", "task"),
    ("task-006", "Monitoring Check", 1, "Quick sensor and vital sign check", "task"),
]

TASK_DOMAINS = [
    ("task-001", "domain-001"),
    ("task-002", "domain-005"),
    ("task-003", "domain-004"),
    ("task-004", "domain-003"),
    ("task-005", "domain-002"),
    ("task-006", "domain-004"),
]

TASK_SENSORS = [
    ("task-001", "sensor-001"), ("task-001", "sensor-002"),
    ("task-003", "sensor-001"), ("task-003", "sensor-006"), ("task-003", "sensor-008"),
    ("task-004", "sensor-001"),
    ("task-005", "sensor-001"), ("task-005", "sensor-003"), ("task-005", "sensor-009"),
    ("task-006", "sensor-001"),
]

# (id, title, seconds, description, type)
SUBSECTIONS = [
    ("subsection-001", "Warm-up", 300, "Initial preparation phase", "subsection"),
    ("subsection-002", "Rest Period", 180, "Recovery break", "break"),
    ("subsection-003", "Baseline Measurement", 120, "Initial readings", "subsection"),
    ("subsection-004", "Cool Down", 600, "Final relaxation phase", "subsection"),
]

SECTIONS = [
    ("section-001", "Pre-Exercise Protocol", "Preparation before main activity"),
    ("section-002", "Main Exercise Phase", "Primary activity period"),
    ("section-003", "Recovery Protocol", "Post-exercise monitoring"),
]

TEMPLATE_ID = "protocol-template-001"
# (task id, importance rating) in template order
TEMPLATE_TASKS = [
    ("task-003", 5.0),
    ("task-001", 4.0),
    ("task-005", 5.0),
    ("task-002", 3.0),
    ("task-004", 4.0),
    ("task-006", 3.0),
]


def _merge_all(db: Session, rows):
    for row in rows:
        db.merge(row)


def seed_catalogue(db: Session):
    """Insert or refresh the built-in rows. Safe to run repeatedly."""
    with atomic(db):
        _merge_all(db, (Sensor(id=i, name=n, category=c, description=d, is_custom=False)
                        for i, n, c, d in SENSORS))
        _merge_all(db, (Domain(id=i, name=n, description=d, is_custom=False) for i, n, d in DOMAINS))
        _merge_all(db, (Task(id=i, title=t, time=m, description=d, type=k, is_custom=False)
                        for i, t, m, d, k in TASKS))
        db.flush()
        _merge_all(db, (TaskDomain(task_id=t, domain_id=d) for t, d in TASK_DOMAINS))
        _merge_all(db, (TaskSensor(task_id=t, sensor_id=s) for t, s in TASK_SENSORS))
        _merge_all(db, (Subsection(id=i, title=t, time=s, description=d, type=k, is_public=True)
                        for i, t, s, d, k in SUBSECTIONS))
        _merge_all(db, (Section(id=i, title=t, description=d, is_public=True) for i, t, d in SECTIONS))
    logger.info("Seeded %d sensors, %d domains, %d tasks, %d subsections, %d sections",
                len(SENSORS), len(DOMAINS), len(TASKS), len(SUBSECTIONS), len(SECTIONS))


def seed_template(db: Session, owner_id: int):
    """Create the default template protocol for `owner_id` unless it exists."""
    if db.get(Protocol, TEMPLATE_ID) is not None:
        logger.info("Template protocol already present")
        return

    with atomic(db):
        db.add(Protocol(
            id=TEMPLATE_ID,
            name="Basic Exercise Protocol",
            description="Standard template for exercise sessions",
            is_template=True,
            created_by=owner_id,
        ))
        db.flush()
        engine = OrderingEngine(db, PROTOCOL_TASKS, autocommit=False)
        for task_id, importance in TEMPLATE_TASKS:
            engine.append(TEMPLATE_ID, task_id, importance_rating=importance)
    logger.info("Seeded template protocol %s for user %s", TEMPLATE_ID, owner_id)
