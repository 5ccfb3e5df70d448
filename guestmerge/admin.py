"""Guestmerge admin."""

from django.contrib import admin

from guestmerge.models import CartItem, Customer, Order, WishlistItem


# ===========================================
# Customer Admin
# ===========================================


class OrderInline(admin.TabularInline):
    model = Order
    extra = 0
    fields = ["number", "status", "total_q", "guest_email", "created_at"]
    readonly_fields = ["number", "status", "total_q", "guest_email", "created_at"]
    show_change_link = True


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "email",
        "phone",
        "customer_type",
        "status",
        "merged_into",
        "created_at",
    ]
    list_filter = ["customer_type", "status"]
    search_fields = ["email", "phone", "auth_user_id", "guest_id"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [OrderInline]

    fieldsets = [
        (None, {"fields": ["customer_type", "status"]}),
        ("Identity", {"fields": ["auth_user_id", "guest_id", "email", "phone"]}),
        ("Extra", {"fields": ["metadata"], "classes": ["collapse"]}),
        ("Audit", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def merged_into(self, obj):
        return obj.merged_into_user_id or "-"

    merged_into.short_description = "Merged into"


# ===========================================
# Guest/user owned rows
# ===========================================


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ["variant_id", "quantity", "auth_user_id", "guest_id", "updated_at"]
    search_fields = ["variant_id", "auth_user_id", "guest_id"]


@admin.register(WishlistItem)
class WishlistItemAdmin(admin.ModelAdmin):
    list_display = ["product_id", "auth_user_id", "guest_id", "created_at"]
    search_fields = ["product_id", "auth_user_id", "guest_id"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ["number", "status", "auth_user_id", "customer", "guest_email", "created_at"]
    list_filter = ["status"]
    search_fields = ["number", "guest_email", "guest_id", "auth_user_id"]
    raw_id_fields = ["customer"]
