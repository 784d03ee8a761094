import json
import datetime


def log_event(action, details=None):
    """Prints one structured line for CloudWatch."""
    print(json.dumps({
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "action": action,
        "details": details or {}
    }, default=str))


def log_error(message, err=None):
    if err is None:
        print(f"[ERROR] {message}")
    else:
        print(f"[ERROR] {message}: {err}")
