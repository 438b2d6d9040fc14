import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('order_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_type', models.CharField(choices=[('course', 'Course'), ('signal', 'Signal Subscription'), ('bot', 'Trading Bot')], db_comment='Copy of product.type at purchase time', max_length=10)),
                ('amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18)),
                ('currency', models.CharField(default='USD', max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], db_comment='pending | processing | completed | failed', default='pending', max_length=20)),
                ('payment_method', models.CharField(choices=[('stripe', 'Stripe'), ('mtn_momo', 'MTN Mobile Money')], db_comment='Provider chosen at checkout', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='orders', to='catalog.product')),
                ('user', models.ForeignKey(db_comment='Buyer', on_delete=django.db.models.deletion.CASCADE, related_name='orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'orders',
                'db_table_comment': 'Orders are never deleted; reconciliation is the only writer of status.',
                'indexes': [
                    models.Index(fields=['user'], name='idx_orders_user'),
                    models.Index(fields=['status'], name='idx_orders_status'),
                    models.Index(fields=['created_at'], name='idx_orders_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('payment_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=18)),
                ('currency', models.CharField(max_length=10)),
                ('provider', models.CharField(choices=[('stripe', 'Stripe'), ('mtn_momo', 'MTN Mobile Money')], max_length=20)),
                ('provider_payment_id', models.CharField(db_comment='Stripe PaymentIntent id or MoMo X-Reference-Id', max_length=255)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('metadata', models.JSONField(blank=True, db_comment='Transaction id, verification timestamps, phone number', default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='payments.order')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payments',
                'db_table_comment': 'Payment attempts, one row per provider reference.',
                'indexes': [
                    models.Index(fields=['order'], name='idx_payments_order'),
                    models.Index(fields=['status', 'created_at'], name='idx_payments_status_created'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('provider', 'provider_payment_id'), name='uniq_payments_provider_reference'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProviderWebhookEvent',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('provider', models.CharField(choices=[('stripe', 'Stripe'), ('mtn_momo', 'MTN Mobile Money')], max_length=20)),
                ('event_id', models.CharField(max_length=255)),
                ('event_type', models.CharField(blank=True, max_length=100)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('received_at', models.DateTimeField(auto_now_add=True)),
                ('processed', models.BooleanField(default=False)),
                ('process_error', models.TextField(blank=True)),
            ],
            options={
                'db_table': 'provider_webhook_events',
                'db_table_comment': 'Audit inbox of provider webhooks and callbacks.',
                'indexes': [
                    models.Index(fields=['received_at'], name='idx_webhook_events_received'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('provider', 'event_id'), name='uniq_webhook_events_provider_event'),
                ],
            },
        ),
    ]
