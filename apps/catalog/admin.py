from django.contrib import admin

from .models import CourseLesson, Product, SignalPlan, TradingBot


class SignalPlanInline(admin.StackedInline):
    model = SignalPlan
    extra = 0


class TradingBotInline(admin.StackedInline):
    model = TradingBot
    extra = 0


class CourseLessonInline(admin.TabularInline):
    model = CourseLesson
    extra = 0
    fields = ['order_index', 'title', 'storage_public_id', 'duration', 'is_preview']
    ordering = ['order_index']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['product_id', 'name', 'type', 'price', 'currency', 'is_active', 'created_at']
    list_filter = ['type', 'is_active', 'currency']
    search_fields = ['name', 'product_id']
    readonly_fields = ['product_id', 'created_at', 'updated_at']
    ordering = ['-created_at']

    def get_inlines(self, request, obj):
        inlines = {
            'signal': [SignalPlanInline],
            'bot': [TradingBotInline],
            'course': [CourseLessonInline],
        }
        return inlines.get(obj.type, []) if obj else []
