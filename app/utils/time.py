import time
from datetime import date, timedelta

def now_ms() -> int:
    return int(time.time() * 1000)

def today() -> date:
    return date.today()

def days_from(start: date, days: int) -> date:
    return start + timedelta(days=int(days))
