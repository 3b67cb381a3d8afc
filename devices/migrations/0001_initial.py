import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Device',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('serial', models.CharField(help_text='Serial number (SN) as scanned', max_length=100)),
                ('serial_key', models.CharField(editable=False, max_length=100, unique=True)),
                ('imei_1', models.CharField(blank=True, default='', max_length=32, verbose_name='IMEI 1')),
                ('imei_2', models.CharField(blank=True, default='', max_length=32, verbose_name='IMEI 2')),
                ('current_status', models.CharField(blank=True, default='', max_length=255)),
                ('model_tag', models.CharField(blank=True, choices=[('V6', 'V6'), ('FAP', 'FAP')], default='', editable=False, help_text='Derived from the serial number', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='DeviceImei',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('imei', models.CharField(max_length=32, unique=True)),
                ('device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='imei_records', to='devices.device')),
            ],
            options={
                'verbose_name': 'IMEI',
                'verbose_name_plural': 'IMEIs',
            },
        ),
        migrations.CreateModel(
            name='AuditEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('serial_snapshot', models.CharField(max_length=100)),
                ('serial_key', models.CharField(db_index=True, editable=False, max_length=100)),
                ('status', models.CharField(max_length=255)),
                ('note', models.TextField(blank=True, default='')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('device', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='audit_entries', to='devices.device')),
            ],
            options={
                'verbose_name': 'audit entry',
                'verbose_name_plural': 'audit entries',
                'ordering': ['-timestamp', '-id'],
            },
        ),
    ]
