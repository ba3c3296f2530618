import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('medicines', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Alert',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('alert_type', models.CharField(choices=[('low_stock', 'Low stock'), ('expiry_warning', 'Expiry warning'), ('overstock', 'Overstock'), ('stockout', 'Stockout')], db_index=True, max_length=20, verbose_name='alert type')),
                ('severity', models.CharField(choices=[('high', 'High'), ('medium', 'Medium'), ('low', 'Low')], db_index=True, max_length=10, verbose_name='severity')),
                ('message', models.TextField(verbose_name='message')),
                ('is_read', models.BooleanField(db_index=True, default=False, verbose_name='read')),
                ('is_resolved', models.BooleanField(db_index=True, default=False, verbose_name='resolved')),
                ('resolved_at', models.DateTimeField(blank=True, null=True, verbose_name='resolved at')),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='alerts', to='medicines.medicine', verbose_name='medicine')),
            ],
            options={
                'verbose_name': 'alert',
                'verbose_name_plural': 'alerts',
                'db_table': 'alerts',
                'ordering': ['-updated_at'],
                'indexes': [
                    models.Index(fields=['medicine', 'alert_type'], name='alert_medicine_type_idx'),
                    models.Index(fields=['is_resolved', 'severity'], name='alert_resolved_severity_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_resolved', False)), fields=('medicine', 'alert_type'), name='unique_open_alert_per_medicine_type'),
                ],
            },
        ),
    ]
