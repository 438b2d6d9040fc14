import uuid

import django.db.models.deletion
import django.utils.timezone
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
            name='DownloadToken',
            fields=[
                ('token', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('issued_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('max_downloads', models.PositiveIntegerField(default=3)),
                ('download_count', models.PositiveIntegerField(db_comment='Only ever incremented, never above max_downloads', default=0)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='download_tokens', to='catalog.product')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='download_tokens', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'download_tokens',
                'db_table_comment': 'Download tokens for bot products. Expired or spent tokens are never revived.',
                'indexes': [
                    models.Index(fields=['user', 'product'], name='idx_download_tokens_user_prod'),
                    models.Index(fields=['expires_at'], name='idx_download_tokens_expires'),
                ],
            },
        ),
    ]
