from stocktrack.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.LOGIN:
        "{actor_role} ({actor_name}) logged in",

    ActivityCode.LOGOUT:
        "{actor_role} ({actor_name}) logged out",

    ActivityCode.CHANGE_PASSWORD:
        "{actor_role} ({actor_name}) changed their password",

    # ---------------- USERS ----------------
    ActivityCode.CREATE_USER:
        "{actor_role} ({actor_name}) created user {target_name} with role {target_role}",

    ActivityCode.UPDATE_USER:
        "{actor_role} ({actor_name}) updated user {target_name}: {changes}",

    # ---------------- PRODUCTS ----------------
    ActivityCode.CREATE_PRODUCT:
        "{actor_role} ({actor_name}) created product {target_name} ({sku})",

    ActivityCode.UPDATE_PRODUCT:
        "{actor_role} ({actor_name}) updated product {target_name}: {changes}",

    ActivityCode.RETIRE_PRODUCT:
        "{actor_role} ({actor_name}) retired product {target_name}",

    # ---------------- LOCATIONS ----------------
    ActivityCode.CREATE_LOCATION:
        "{actor_role} ({actor_name}) created location {target_name}",

    ActivityCode.UPDATE_LOCATION:
        "{actor_role} ({actor_name}) updated location {target_name}: {changes}",

    ActivityCode.RETIRE_LOCATION:
        "{actor_role} ({actor_name}) retired location {target_name}",

    ActivityCode.ASSIGN_MANAGER:
        "{actor_role} ({actor_name}) assigned manager {manager_name} to location {target_name}",

    ActivityCode.REMOVE_MANAGER:
        "{actor_role} ({actor_name}) removed manager {manager_name} from location {target_name}",

    # ---------------- INVENTORY ----------------
    ActivityCode.STOCK_CHANGE:
        "{actor_role} ({actor_name}) recorded stock {transaction_type} of {quantity} "
        "for product {product_id} at location {location_id} "
        "({previous_quantity} → {new_quantity}, ref: {reference_number})",

    # ---------------- SALES ----------------
    ActivityCode.CREATE_SALE:
        "{actor_role} ({actor_name}) recorded sale #{target_id} of {quantity} units "
        "for product {product_id} at location {location_id}",

    ActivityCode.UPDATE_SALE:
        "{actor_role} ({actor_name}) updated sale #{target_id}: {changes}",

    ActivityCode.DELETE_SALE:
        "{actor_role} ({actor_name}) deleted sale #{target_id} and restored {quantity} units",

    ActivityCode.BULK_UPLOAD_SALES:
        "{actor_role} ({actor_name}) uploaded {total} sales rows ({succeeded} ok, {failed} failed)",
}
