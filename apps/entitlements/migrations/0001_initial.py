import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('payments', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='UserAccess',
            fields=[
                ('access_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('product_type', models.CharField(choices=[('course', 'Course'), ('signal', 'Signal Subscription'), ('bot', 'Trading Bot')], max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('access_granted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('access_expires_at', models.DateTimeField(blank=True, db_comment='NULL = lifetime access', null=True)),
                ('granted_by', models.CharField(choices=[('payment', 'Payment'), ('manual', 'Manual'), ('subscription', 'Subscription')], default='payment', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(blank=True, db_comment='Order that produced the latest grant', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='access_grants', to='payments.order')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_grants', to='catalog.product')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='product_access', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'user_access',
                'db_table_comment': 'Entitlements. Expired or inactive rows grant nothing.',
                'indexes': [
                    models.Index(fields=['user', 'is_active'], name='idx_user_access_user_active'),
                    models.Index(fields=['access_expires_at'], name='idx_user_access_expires'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'product'), name='uniq_user_access_user_product'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Subscription',
            fields=[
                ('subscription_id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('status', models.CharField(choices=[('active', 'Active'), ('canceled', 'Canceled'), ('expired', 'Expired')], default='active', max_length=20)),
                ('current_period_start', models.DateTimeField()),
                ('current_period_end', models.DateTimeField()),
                ('cancel_at_period_end', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('plan', models.ForeignKey(limit_choices_to={'type': 'signal'}, on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to='catalog.product')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='subscriptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'subscriptions',
                'db_table_comment': 'Signal plan periods. Each renewal replaces the period.',
                'indexes': [
                    models.Index(fields=['status', 'current_period_end'], name='idx_subscriptions_status_end'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'plan'), name='uniq_subscriptions_user_plan'),
                ],
            },
        ),
    ]
