import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import medicines.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Medicine',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=255, verbose_name='name')),
                ('generic_name', models.CharField(blank=True, max_length=255, verbose_name='generic name')),
                ('category', models.CharField(choices=[('tablets', 'Tablets'), ('capsules', 'Capsules'), ('injections', 'Injections'), ('syrups', 'Syrups'), ('ointments', 'Ointments'), ('drops', 'Drops'), ('surgical', 'Surgical'), ('equipment', 'Equipment'), ('other', 'Other')], db_index=True, default='other', max_length=20, verbose_name='category')),
                ('manufacturer', models.CharField(blank=True, max_length=255, verbose_name='manufacturer')),
                ('unit', models.CharField(default='units', help_text='Dispensing unit, e.g. tablets, vials, bottles', max_length=50, verbose_name='unit')),
                ('reorder_level', models.PositiveIntegerField(default=medicines.models.default_reorder_level, help_text='On-hand quantity at or below which stock is low', verbose_name='reorder level')),
                ('safety_stock', models.PositiveIntegerField(default=medicines.models.default_safety_stock, help_text='Buffer kept on hand on top of forecast demand', verbose_name='safety stock')),
            ],
            options={
                'verbose_name': 'medicine',
                'verbose_name_plural': 'medicines',
                'db_table': 'medicines',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['category', 'name'], name='medicine_category_name_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InventoryBatch',
            fields=[
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('batch_number', models.CharField(max_length=100, verbose_name='batch number')),
                ('quantity', models.PositiveIntegerField(default=0, verbose_name='quantity')),
                ('expiry_date', models.DateField(db_index=True, verbose_name='expiry date')),
                ('supplier', models.CharField(blank=True, max_length=255, verbose_name='supplier')),
                ('unit_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='unit price')),
                ('location', models.CharField(blank=True, help_text='Shelf, room or store holding the batch', max_length=120, verbose_name='location')),
                ('medicine', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='medicines.medicine', verbose_name='medicine')),
            ],
            options={
                'verbose_name': 'inventory batch',
                'verbose_name_plural': 'inventory batches',
                'db_table': 'inventory_items',
                'ordering': ['expiry_date'],
                'indexes': [
                    models.Index(fields=['medicine', 'expiry_date'], name='batch_medicine_expiry_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('medicine', 'batch_number'), name='unique_batch_per_medicine'),
                ],
            },
        ),
    ]
