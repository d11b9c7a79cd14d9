from django.contrib import admin

from .models import Goal, ScheduledTransaction, Transaction


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    list_display = ("name", "user", "type", "progress", "target_amount", "status", "end_date")
    list_filter = ("status", "type")
    search_fields = ("name", "user__username", "user__email")


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("date", "user", "type", "category", "amount", "payment_method", "goal")
    list_filter = ("type", "category", "payment_method", "is_scheduled")
    search_fields = ("description", "user__username")
    raw_id_fields = ("goal", "scheduled_transaction")
    date_hierarchy = "date"


@admin.register(ScheduledTransaction)
class ScheduledTransactionAdmin(admin.ModelAdmin):
    list_display = ("description", "user", "frequency", "amount", "status", "next_execution")
    list_filter = ("status", "frequency", "type")
    search_fields = ("description", "user__username")
    readonly_fields = ("last_execution",)
