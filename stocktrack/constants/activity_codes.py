from enum import Enum


class ActivityCode(str, Enum):
    # ---------------- AUTH ----------------
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"

    # ---------------- USERS ----------------
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"

    # ---------------- PRODUCTS ----------------
    CREATE_PRODUCT = "CREATE_PRODUCT"
    UPDATE_PRODUCT = "UPDATE_PRODUCT"
    RETIRE_PRODUCT = "RETIRE_PRODUCT"

    # ---------------- LOCATIONS ----------------
    CREATE_LOCATION = "CREATE_LOCATION"
    UPDATE_LOCATION = "UPDATE_LOCATION"
    RETIRE_LOCATION = "RETIRE_LOCATION"
    ASSIGN_MANAGER = "ASSIGN_MANAGER"
    REMOVE_MANAGER = "REMOVE_MANAGER"

    # ---------------- INVENTORY ----------------
    STOCK_CHANGE = "STOCK_CHANGE"

    # ---------------- SALES ----------------
    CREATE_SALE = "CREATE_SALE"
    UPDATE_SALE = "UPDATE_SALE"
    DELETE_SALE = "DELETE_SALE"
    BULK_UPLOAD_SALES = "BULK_UPLOAD_SALES"
