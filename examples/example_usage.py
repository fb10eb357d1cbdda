"""Example: drive one attendance cycle through the service layer (no Flask).

Controllers are thin; the same calls back the HTTP endpoints.
"""

import importlib
from datetime import datetime, timedelta

from config import get_settings_module

from classroom_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)
    service = container.attendance_service

    session = service.refresh("t01")
    if session is None:
        print("No class on the timetable right now")
        return

    first = service.machine.roster[0] if service.machine.roster else None
    if first is not None:
        now = datetime.now()
        service.ingest_tap(student_id=first.student_id, timestamp=now)
        if first.sensor_binding:
            service.ingest_weight(sensor_id=first.sensor_binding, weight=55.0, timestamp=now + timedelta(seconds=20))
        service.pump()

    print(service.rows())
    print(service.stats().as_dict())
    service.shutdown()


if __name__ == "__main__":
    main()
