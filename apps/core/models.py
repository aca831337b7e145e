from django.db import models
from django.db.models import Q
from django.conf import settings
from django.utils import timezone
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator, MaxValueValidator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import hashlib
import secrets
import uuid


MEAL_CHOICES = [
	('LUNCH', 'Lunch'),
	('DINNER', 'Dinner'),
]

ACCESS_METHOD_CHOICES = [
	('SELF_ID', 'Student ID'),
	('DELEGATED_CODE', 'Pickup Code'),
]


def new_qr_nonce():
	return secrets.token_hex(16)


def validate_timezone(value):
	try:
		ZoneInfo(value)
	except (ZoneInfoNotFoundError, ValueError, OSError):
		raise ValidationError(f"{value!r} is not a known time zone")


class Student(models.Model):
	MEAL_PLAN_CHOICES = [
		('L', 'Lunch only'),
		('D', 'Dinner only'),
		('DL', 'Lunch and dinner'),
	]

	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	short_id = models.PositiveIntegerField(unique=True)
	full_name = models.CharField(max_length=100)
	tg_user_id = models.BigIntegerField(unique=True, null=True, blank=True)
	phone = models.CharField(
		max_length=15,
		blank=True,
		validators=[RegexValidator(regex=r'^\+?1?\d{9,15}$')]
	)
	meal_plan = models.CharField(max_length=2, choices=MEAL_PLAN_CHOICES, default='DL')
	is_active = models.BooleanField(default=True)
	subscription_start_date = models.DateField(null=True, blank=True)
	subscription_end_date = models.DateField(null=True, blank=True)
	qr_nonce = models.CharField(max_length=32, default=new_qr_nonce)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	def __str__(self):
		return f"{self.full_name} ({self.short_id})"

	class Meta:
		db_table = 'students'


class MealLog(models.Model):
	"""Append-only ledger of consumed meals."""

	STATUS_CHOICES = [
		('CONSUMED', 'Consumed'),
	]

	student = models.ForeignKey(Student, on_delete=models.PROTECT, related_name='meal_logs')
	date = models.DateField()
	meal = models.CharField(max_length=10, choices=MEAL_CHOICES)
	status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='CONSUMED')
	access_method = models.CharField(max_length=20, choices=ACCESS_METHOD_CHOICES)
	created_at = models.DateTimeField(default=timezone.now)

	def __str__(self):
		return f"{self.student.full_name} - {self.date} {self.meal} - {self.status}"

	class Meta:
		db_table = 'meal_logs'
		constraints = [
			models.UniqueConstraint(
				fields=['student', 'date', 'meal'],
				condition=Q(status='CONSUMED'),
				name='unique_consumed_meal_per_day',
			),
		]
		indexes = [
			models.Index(fields=['date', '-created_at'], name='meal_logs_date_idx'),
		]


class PickupCode(models.Model):
	"""One-time code that lets someone else collect a student's meal."""

	student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='pickup_codes')
	code = models.CharField(max_length=12)
	created_at = models.DateTimeField(default=timezone.now)
	expires_at = models.DateTimeField()
	is_used = models.BooleanField(default=False)
	used_at = models.DateTimeField(null=True, blank=True)

	def __str__(self):
		return f"{self.student.full_name} - {self.code}"

	def is_expired(self, now=None):
		now = now or timezone.now()
		return now >= self.expires_at

	def is_redeemable(self, now=None):
		return not self.is_used and not self.is_expired(now)

	def status(self, now=None):
		if self.is_used:
			return 'USED'
		if self.is_expired(now):
			return 'EXPIRED'
		return 'ACTIVE'

	class Meta:
		db_table = 'pickup_codes'
		indexes = [
			models.Index(fields=['code', 'is_used'], name='pickup_codes_lookup_idx'),
		]


class VerificationEvent(models.Model):
	"""Every verification attempt, successful or not. Backs the live feed."""

	RESULT_CHOICES = [
		('SUCCESS', 'Success'),
		('NOT_FOUND', 'Student not found'),
		('SUBSCRIPTION_INACTIVE', 'Subscription inactive'),
		('ALREADY_RECORDED', 'Already recorded'),
		('CODE_EXPIRED', 'Code expired'),
		('CODE_NOT_FOUND', 'Code not found'),
		('STORE_UNAVAILABLE', 'Store unavailable'),
	]

	student = models.ForeignKey(
		Student, on_delete=models.SET_NULL, null=True, blank=True, related_name='verification_events'
	)
	meal = models.CharField(max_length=10, choices=MEAL_CHOICES, blank=True)
	access_method = models.CharField(max_length=20, choices=ACCESS_METHOD_CHOICES)
	result = models.CharField(max_length=25, choices=RESULT_CHOICES)
	message = models.CharField(max_length=200, blank=True)
	staff_token = models.ForeignKey('StaffToken', on_delete=models.SET_NULL, null=True, blank=True)
	device_info = models.TextField(blank=True)
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self):
		return f"{self.access_method} - {self.result} - {self.created_at}"

	class Meta:
		db_table = 'verification_events'


class StaffToken(models.Model):
	label = models.CharField(max_length=100)
	issued_at = models.DateTimeField(auto_now_add=True)
	expires_at = models.DateTimeField(null=True, blank=True)
	active = models.BooleanField(default=True)
	token_hash = models.CharField(max_length=64, unique=True)

	def __str__(self):
		return f"{self.label} - {'Active' if self.active else 'Inactive'}"

	@classmethod
	def create_token(cls, label, expires_days=None):
		token = secrets.token_urlsafe(32)
		token_hash = hashlib.sha256(token.encode()).hexdigest()

		if expires_days is None:
			expires_days = settings.STAFF_TOKEN_EXPIRY_DAYS

		expires_at = None
		if expires_days:
			expires_at = timezone.now() + timezone.timedelta(days=expires_days)

		staff_token = cls.objects.create(
			label=label,
			expires_at=expires_at,
			token_hash=token_hash
		)

		return staff_token, token

	class Meta:
		db_table = 'staff_tokens'


class AuditLog(models.Model):
	ACTOR_TYPE_CHOICES = [
		('STUDENT', 'Student'),
		('OWNER', 'Owner'),
		('STAFF', 'Staff'),
		('SYSTEM', 'System'),
	]

	actor_type = models.CharField(max_length=10, choices=ACTOR_TYPE_CHOICES)
	actor_id = models.CharField(max_length=50, null=True, blank=True)
	event_type = models.CharField(max_length=50)
	payload = models.JSONField()
	created_at = models.DateTimeField(auto_now_add=True)

	def __str__(self):
		return f"{self.actor_type} - {self.event_type} - {self.created_at}"

	class Meta:
		db_table = 'audit_logs'


def _mess_default(key):
	return settings.MESS_CONFIG[key]


class Settings(models.Model):
	# Singleton pattern for global settings
	SLOT_POLICY_CHOICES = [
		('CUTOFF', 'Single cutoff hour'),
		('WINDOWS', 'Configured meal windows'),
	]

	id = models.BooleanField(default=True, primary_key=True)
	timezone = models.CharField(max_length=50, default='Asia/Kolkata', validators=[validate_timezone])
	lunch_start = models.TimeField(default='12:00')
	lunch_end = models.TimeField(default='14:00')
	dinner_start = models.TimeField(default='19:00')
	dinner_end = models.TimeField(default='21:00')
	meal_cutoff_hour = models.PositiveSmallIntegerField(default=16, validators=[MaxValueValidator(23)])
	slot_policy = models.CharField(max_length=10, choices=SLOT_POLICY_CHOICES, default='CUTOFF')
	lunch_price = models.DecimalField(max_digits=8, decimal_places=2, default=50)
	dinner_price = models.DecimalField(max_digits=8, decimal_places=2, default=50)
	code_ttl_minutes = models.PositiveSmallIntegerField(default=15)
	qr_secret_version = models.IntegerField(default=1)

	def save(self, *args, **kwargs):
		self.id = True
		return super().save(*args, **kwargs)

	@classmethod
	def get_settings(cls):
		obj, created = cls.objects.get_or_create(
			id=True,
			defaults={
				'timezone': settings.TIME_ZONE,
				'meal_cutoff_hour': _mess_default('meal_cutoff_hour'),
				'code_ttl_minutes': _mess_default('code_ttl_minutes'),
			}
		)
		return obj

	class Meta:
		db_table = 'settings'
