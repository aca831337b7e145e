from rest_framework import serializers
from django.conf import settings
from apps.core.models import Student, MealLog, PickupCode, VerificationEvent
from apps.redemption.clock import mess_today
from apps.redemption.ledger import meals_consumed_on


class StudentSnapshotSerializer(serializers.ModelSerializer):
	meals_today = serializers.SerializerMethodField()

	class Meta:
		model = Student
		fields = ['id', 'short_id', 'full_name', 'meal_plan', 'is_active',
				 'subscription_end_date', 'meals_today']

	def get_meals_today(self, obj):
		return meals_consumed_on(obj, mess_today())


class ShortIdVerifySerializer(serializers.Serializer):
	short_id = serializers.IntegerField(min_value=1)
	device_info = serializers.CharField(required=False, allow_blank=True, default='')


class CodeVerifySerializer(serializers.Serializer):
	code = serializers.RegexField(r'^\d+$')
	device_info = serializers.CharField(required=False, allow_blank=True, default='')

	def validate_code(self, value):
		length = settings.MESS_CONFIG['code_length']
		if len(value) != length:
			raise serializers.ValidationError(f"Pickup codes are {length} digits")
		return value


class QrVerifySerializer(serializers.Serializer):
	qr_data = serializers.CharField()
	device_info = serializers.CharField(required=False, allow_blank=True, default='')


class MealLogSerializer(serializers.ModelSerializer):
	student_name = serializers.CharField(source='student.full_name', read_only=True)
	student_short_id = serializers.IntegerField(source='student.short_id', read_only=True)

	class Meta:
		model = MealLog
		fields = ['id', 'student_name', 'student_short_id', 'date', 'meal',
				 'status', 'access_method', 'created_at']


class PickupCodeSerializer(serializers.ModelSerializer):
	status = serializers.SerializerMethodField()

	class Meta:
		model = PickupCode
		fields = ['id', 'code', 'created_at', 'expires_at', 'is_used', 'status']

	def get_status(self, obj):
		return obj.status(self.context.get('now'))


class VerificationEventSerializer(serializers.ModelSerializer):
	student_name = serializers.CharField(source='student.full_name', read_only=True, default=None)
	student_short_id = serializers.IntegerField(source='student.short_id', read_only=True, default=None)

	class Meta:
		model = VerificationEvent
		fields = ['id', 'student_name', 'student_short_id', 'meal', 'access_method',
				 'result', 'message', 'device_info', 'created_at']
