import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('product_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('course', 'Course'), ('signal', 'Signal Subscription'), ('bot', 'Trading Bot')], db_comment='course | signal | bot', max_length=10)),
                ('price', models.DecimalField(db_comment='List price in `currency`', decimal_places=2, default=Decimal('0.00'), max_digits=18)),
                ('currency', models.CharField(default='USD', max_length=10)),
                ('is_active', models.BooleanField(db_comment='Inactive products cannot be purchased', default=True)),
                ('metadata', models.JSONField(blank=True, db_comment='Provider-agnostic attributes (interval for signals, thumbnails, ...)', default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'db_table_comment': 'Sellable digital products: courses, signal plans and bots.',
                'indexes': [
                    models.Index(fields=['type'], name='idx_products_type'),
                    models.Index(fields=['is_active'], name='idx_products_active'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SignalPlan',
            fields=[
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='signal_plan', serialize=False, to='catalog.product')),
                ('interval', models.CharField(choices=[('weekly', 'Weekly'), ('monthly', 'Monthly')], max_length=10)),
                ('features', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'signal_plans',
                'db_table_comment': 'Billing interval and feature list of signal products.',
            },
        ),
        migrations.CreateModel(
            name='TradingBot',
            fields=[
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name='bot', serialize=False, to='catalog.product')),
                ('download_url', models.TextField(blank=True)),
                ('version', models.CharField(blank=True, max_length=50)),
                ('setup_instructions', models.TextField(blank=True)),
                ('requirements', models.JSONField(blank=True, default=list)),
            ],
            options={
                'db_table': 'trading_bots',
                'db_table_comment': 'Download details of bot products.',
            },
        ),
        migrations.CreateModel(
            name='CourseLesson',
            fields=[
                ('lesson_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('storage_public_id', models.CharField(db_comment='Identifier of the video in the media store; signed into streaming URLs', max_length=255)),
                ('duration', models.CharField(blank=True, max_length=20)),
                ('order_index', models.PositiveIntegerField(default=0)),
                ('is_preview', models.BooleanField(db_comment='Preview lessons stream without a purchase', default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('course', models.ForeignKey(limit_choices_to={'type': 'course'}, on_delete=django.db.models.deletion.CASCADE, related_name='lessons', to='catalog.product')),
            ],
            options={
                'db_table': 'course_lessons',
                'ordering': ['course', 'order_index'],
                'indexes': [
                    models.Index(fields=['course', 'order_index'], name='idx_lessons_course_order'),
                ],
            },
        ),
    ]
