from enum import IntEnum


class AppID(IntEnum):
    USER = 1
    PUBLIC = 2


class OrderIn(IntEnum):
    ASC = 1
    DESC = 2


class PlatformType(IntEnum):
    OTHER = 1
    WEB = 2
    NATIVE = 3
    SERVER = 4


class ReportType(IntEnum):
    DELAY = 1
    OVERCROWDING = 2
    ROUTE_CHANGE = 3
    SAFETY = 4
    OTHER = 5


class ErrorKind(IntEnum):
    INVALID_INPUT = 1
    NOT_FOUND = 2
    CONFLICT = 3
    UNAUTHORIZED = 4
    STORAGE_FAILURE = 5
