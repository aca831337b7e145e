import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import apps.core.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('actor_type', models.CharField(choices=[('STUDENT', 'Student'), ('OWNER', 'Owner'), ('STAFF', 'Staff'), ('SYSTEM', 'System')], max_length=10)),
                ('actor_id', models.CharField(blank=True, max_length=50, null=True)),
                ('event_type', models.CharField(max_length=50)),
                ('payload', models.JSONField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'audit_logs',
            },
        ),
        migrations.CreateModel(
            name='Settings',
            fields=[
                ('id', models.BooleanField(default=True, primary_key=True, serialize=False)),
                ('timezone', models.CharField(default='Asia/Kolkata', max_length=50)),
                ('lunch_start', models.TimeField(default='12:00')),
                ('lunch_end', models.TimeField(default='14:00')),
                ('dinner_start', models.TimeField(default='19:00')),
                ('dinner_end', models.TimeField(default='21:00')),
                ('meal_cutoff_hour', models.PositiveSmallIntegerField(default=16, validators=[django.core.validators.MaxValueValidator(23)])),
                ('slot_policy', models.CharField(choices=[('CUTOFF', 'Single cutoff hour'), ('WINDOWS', 'Configured meal windows')], default='CUTOFF', max_length=10)),
                ('lunch_price', models.DecimalField(decimal_places=2, default=50, max_digits=8)),
                ('dinner_price', models.DecimalField(decimal_places=2, default=50, max_digits=8)),
                ('code_ttl_minutes', models.PositiveSmallIntegerField(default=15)),
                ('qr_secret_version', models.IntegerField(default=1)),
            ],
            options={
                'db_table': 'settings',
            },
        ),
        migrations.CreateModel(
            name='StaffToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=100)),
                ('issued_at', models.DateTimeField(auto_now_add=True)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('active', models.BooleanField(default=True)),
                ('token_hash', models.CharField(max_length=64, unique=True)),
            ],
            options={
                'db_table': 'staff_tokens',
            },
        ),
        migrations.CreateModel(
            name='Student',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('short_id', models.PositiveIntegerField(unique=True)),
                ('full_name', models.CharField(max_length=100)),
                ('tg_user_id', models.BigIntegerField(blank=True, null=True, unique=True)),
                ('phone', models.CharField(blank=True, max_length=15, validators=[django.core.validators.RegexValidator(regex='^\\+?1?\\d{9,15}$')])),
                ('meal_plan', models.CharField(choices=[('L', 'Lunch only'), ('D', 'Dinner only'), ('DL', 'Lunch and dinner')], default='DL', max_length=2)),
                ('is_active', models.BooleanField(default=True)),
                ('subscription_start_date', models.DateField(blank=True, null=True)),
                ('subscription_end_date', models.DateField(blank=True, null=True)),
                ('qr_nonce', models.CharField(default=apps.core.models.new_qr_nonce, max_length=32)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'students',
            },
        ),
        migrations.CreateModel(
            name='PickupCode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=12)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('is_used', models.BooleanField(default=False)),
                ('used_at', models.DateTimeField(blank=True, null=True)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='pickup_codes', to='core.student')),
            ],
            options={
                'db_table': 'pickup_codes',
                'indexes': [models.Index(fields=['code', 'is_used'], name='pickup_codes_lookup_idx')],
            },
        ),
        migrations.CreateModel(
            name='MealLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('meal', models.CharField(choices=[('LUNCH', 'Lunch'), ('DINNER', 'Dinner')], max_length=10)),
                ('status', models.CharField(choices=[('CONSUMED', 'Consumed'), ('SKIPPED', 'Skipped'), ('LEAVE', 'Leave')], default='CONSUMED', max_length=10)),
                ('access_method', models.CharField(choices=[('SELF_ID', 'Student ID'), ('DELEGATED_CODE', 'Pickup Code')], max_length=20)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='meal_logs', to='core.student')),
            ],
            options={
                'db_table': 'meal_logs',
                'indexes': [models.Index(fields=['date', '-created_at'], name='meal_logs_date_idx')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status', 'CONSUMED')), fields=('student', 'date', 'meal'), name='unique_consumed_meal_per_day')],
            },
        ),
        migrations.CreateModel(
            name='VerificationEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('meal', models.CharField(blank=True, choices=[('LUNCH', 'Lunch'), ('DINNER', 'Dinner')], max_length=10)),
                ('access_method', models.CharField(choices=[('SELF_ID', 'Student ID'), ('DELEGATED_CODE', 'Pickup Code')], max_length=20)),
                ('result', models.CharField(choices=[('SUCCESS', 'Success'), ('NOT_FOUND', 'Student not found'), ('SUBSCRIPTION_INACTIVE', 'Subscription inactive'), ('ALREADY_RECORDED', 'Already recorded'), ('CODE_EXPIRED', 'Code expired'), ('CODE_NOT_FOUND', 'Code not found'), ('STORE_UNAVAILABLE', 'Store unavailable')], max_length=25)),
                ('message', models.CharField(blank=True, max_length=200)),
                ('device_info', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('staff_token', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to='core.stafftoken')),
                ('student', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='verification_events', to='core.student')),
            ],
            options={
                'db_table': 'verification_events',
            },
        ),
    ]
