# Inventory
from stocktrack.models.inventory.location_models import Location, UserLocation
from stocktrack.models.inventory.inventory_record_models import InventoryRecord
from stocktrack.models.inventory.stock_transaction_models import StockTransaction

# Masters
from stocktrack.models.masters.product_models import Product

# Users and audit
from stocktrack.models.users.user_models import User
from stocktrack.models.support.activity_models import ActivityLog

# Sales
from stocktrack.models.sales.sale_models import Sale
