from django.urls import path
from . import views

app_name = "stock"

urlpatterns = [
    path("inventory", views.InventoryListView.as_view(), name="inventory-list"),
    path("inventory/summary", views.InventorySummaryView.as_view(), name="inventory-summary"),
    path("inventory/item/<str:item_code>", views.InventoryByCodeView.as_view(), name="inventory-by-code"),
    path("inventory/<int:item_id>", views.InventoryDetailView.as_view(), name="inventory-detail"),
    path("inventory/<int:item_id>/stock", views.InventoryStockView.as_view(), name="inventory-stock"),
    path("inventory/<int:item_id>/transactions", views.InventoryTransactionsView.as_view(), name="inventory-transactions"),

    path("recipes", views.RecipeListView.as_view(), name="recipe-list"),
    path("recipes/<int:recipe_id>", views.RecipeDetailView.as_view(), name="recipe-detail"),
    path("recipes/<int:recipe_id>/materials", views.RecipeMaterialsView.as_view(), name="recipe-materials"),

    path("purchases", views.PurchaseListView.as_view(), name="purchase-list"),
    path("purchases/<int:purchase_id>", views.PurchaseDetailView.as_view(), name="purchase-detail"),

    path("production-orders", views.ProductionOrderListView.as_view(), name="production-list"),
    path("production-orders/open", views.ProductionOrderOpenView.as_view(), name="production-open"),
    path("production-orders/availability", views.ProductionAvailabilityView.as_view(), name="production-availability"),
    path("production-orders/<int:order_id>", views.ProductionOrderDetailView.as_view(), name="production-detail"),
]
