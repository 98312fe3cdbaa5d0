from datetime import datetime

TRUE_VALUES = ['true', '1', 'yes', 'on']


def parse_date(value):
    """YYYY-MM-DD -> date; raises ValueError."""
    return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()


def parse_time(value):
    """HH:MM or HH:MM:SS -> time; raises ValueError."""
    value = str(value).strip()
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    return datetime.strptime(value, fmt).time()


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).lower() in TRUE_VALUES


def request_data(request):
    """JSON body when present, otherwise form fields."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def missing_fields(data, required):
    return [field for field in required if data.get(field) in (None, "")]
