from enum import Enum


class ErrorCode(str, Enum):
    # ---------------- GENERIC ----------------
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # ---------------- AUTH ----------------
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    USER_INACTIVE = "USER_INACTIVE"
    LOCATION_ACCESS_DENIED = "LOCATION_ACCESS_DENIED"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"

    # ---------------- USERS ----------------
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_EXISTS = "USER_EXISTS"
    USER_ROLE_INVALID = "USER_ROLE_INVALID"

    # ---------------- PRODUCTS ----------------
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    PRODUCT_SKU_EXISTS = "PRODUCT_SKU_EXISTS"
    PRODUCT_HAS_STOCK = "PRODUCT_HAS_STOCK"

    # ---------------- LOCATIONS ----------------
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    LOCATION_NAME_EXISTS = "LOCATION_NAME_EXISTS"
    LOCATION_HAS_STOCK = "LOCATION_HAS_STOCK"
    LOCATION_HAS_MANAGERS = "LOCATION_HAS_MANAGERS"
    MANAGER_NOT_FOUND = "MANAGER_NOT_FOUND"
    MANAGER_ALREADY_ASSIGNED = "MANAGER_ALREADY_ASSIGNED"
    ASSIGNMENT_NOT_FOUND = "ASSIGNMENT_NOT_FOUND"

    # ---------------- INVENTORY ----------------
    INVENTORY_NOT_FOUND = "INVENTORY_NOT_FOUND"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INVALID_TRANSACTION_TYPE = "INVALID_TRANSACTION_TYPE"

    # ---------------- SALES ----------------
    SALE_NOT_FOUND = "SALE_NOT_FOUND"
    INVALID_UPLOAD = "INVALID_UPLOAD"
