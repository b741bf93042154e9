import enum


class RecordStatus(str, enum.Enum):
    active = "active"
    retired = "retired"
