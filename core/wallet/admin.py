from django.contrib import admin
from .models import Credit, CreditTransaction


class CreditTransactionInline(admin.TabularInline):
    model = CreditTransaction
    extra = 0
    fields = ('transaction_type', 'amount', 'balance_before', 'balance_after', 'booking', 'created_at')
    readonly_fields = fields
    can_delete = False


@admin.register(Credit)
class CreditAdmin(admin.ModelAdmin):
    list_display = ('parent', 'amount', 'used_amount', 'source', 'status', 'expires_at', 'created_at')
    list_filter = ('source', 'status')
    search_fields = ('parent__username', 'parent__email', 'description')
    readonly_fields = ('used_amount', 'created_at', 'updated_at')
    inlines = [CreditTransactionInline]


@admin.register(CreditTransaction)
class CreditTransactionAdmin(admin.ModelAdmin):
    list_display = ('parent', 'transaction_type', 'amount', 'balance_before', 'balance_after', 'created_at')
    list_filter = ('transaction_type', 'created_at')
    search_fields = ('parent__username', 'description')
    readonly_fields = [f.name for f in CreditTransaction._meta.fields]
