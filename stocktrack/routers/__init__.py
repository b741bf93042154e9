# stocktrack/routers/__init__.py

from .users.user_router import router as user_router

from .auth.auth_router import router as auth_router
from .auth.activity_router import router as activity_router

from .masters.product_router import router as product_router

from .inventory.location_router import router as location_router
from .inventory.inventory_router import router as inventory_router

from .sales.sales_router import router as sales_router


__all__ = [
"user_router",

"auth_router",
"activity_router",

"product_router",

"location_router",
"inventory_router",

"sales_router",
]
