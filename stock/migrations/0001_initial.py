import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('medicines', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ConsumptionRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('consumption_date', models.DateField(db_index=True, verbose_name='consumption date')),
                ('quantity_consumed', models.IntegerField(verbose_name='quantity consumed')),
                ('notes', models.TextField(blank=True, verbose_name='notes')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('corrects', models.ForeignKey(blank=True, help_text='Record this row corrects, if it is a correction', null=True, on_delete=django.db.models.deletion.RESTRICT, related_name='corrections', to='stock.consumptionrecord', verbose_name='corrects')),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='consumption_records', to='medicines.medicine', verbose_name='medicine')),
                ('recorded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='recorded by')),
            ],
            options={
                'verbose_name': 'consumption record',
                'verbose_name_plural': 'consumption records',
                'db_table': 'consumption_history',
                'ordering': ['-consumption_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['medicine', 'consumption_date'], name='consumption_med_date_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_consumed', 0), _negated=True), name='consumption_quantity_non_zero'),
                    models.CheckConstraint(condition=models.Q(('quantity_consumed__gt', 0), ('corrects__isnull', False), _connector='OR'), name='consumption_negative_only_for_corrections'),
                ],
            },
        ),
    ]
