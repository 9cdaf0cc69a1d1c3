import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('main', '0001_initial'),
        ('stock', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MachineLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('log_date', models.DateTimeField()),
                ('shift', models.CharField(choices=[('DAY', 'Day'), ('NIGHT', 'Night'), ('GENERAL', 'General')], db_index=True, max_length=10)),
                ('working_hours', models.DecimalField(decimal_places=2, default=0, max_digits=6)),
                ('idle_hours', models.DecimalField(decimal_places=2, default=0, max_digits=6)),
                ('downtime_hours', models.DecimalField(decimal_places=2, default=0, max_digits=6)),
                ('actual_qty_produced', models.PositiveIntegerField(default=0)),
                ('wastage_qty', models.DecimalField(decimal_places=4, default=0, max_digits=15)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('machine', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='logs', to='main.machine')),
                ('operator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='machine_logs', to='main.operator')),
                ('production_order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='machine_logs', to='stock.productionorder')),
            ],
            options={
                'ordering': ['-log_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='OperatorEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_type', models.CharField(default='Production', max_length=50)),
                ('start_time', models.DateTimeField()),
                ('end_time', models.DateTimeField(blank=True, null=True)),
                ('duration_minutes', models.PositiveIntegerField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('operator', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='entries', to='main.operator')),
                ('production_order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='operator_entries', to='stock.productionorder')),
            ],
            options={
                'verbose_name_plural': 'operator entries',
                'ordering': ['-start_time', '-id'],
                'constraints': [models.UniqueConstraint(condition=models.Q(('end_time__isnull', True)), fields=('operator',), name='one_open_entry_per_operator')],
            },
        ),
    ]
