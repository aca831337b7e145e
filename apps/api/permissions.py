import hashlib
from rest_framework.authentication import BaseAuthentication
from rest_framework.permissions import BasePermission
from rest_framework.exceptions import AuthenticationFailed
from django.utils import timezone
from apps.core.models import StaffToken


class StaffUser:
	"""Request user for a verification terminal holding a staff token"""

	is_authenticated = True

	def __init__(self, staff_token):
		self.staff_token = staff_token

	def __str__(self):
		return self.staff_token.label


class StaffTokenAuthentication(BaseAuthentication):
	"""Bearer token authentication for staff terminals"""

	def authenticate(self, request):
		auth_header = request.META.get('HTTP_AUTHORIZATION')
		if not auth_header or not auth_header.startswith('Bearer '):
			return None

		token = auth_header.split(' ', 1)[1].strip()
		token_hash = hashlib.sha256(token.encode()).hexdigest()

		try:
			staff_token = StaffToken.objects.get(
				token_hash=token_hash,
				active=True
			)
		except StaffToken.DoesNotExist:
			raise AuthenticationFailed('Invalid token')

		if staff_token.expires_at and timezone.now() > staff_token.expires_at:
			raise AuthenticationFailed('Token expired')

		return (StaffUser(staff_token), staff_token)

	def authenticate_header(self, request):
		return 'Bearer'


class IsStaffUser(BasePermission):
	"""Staff token holders, or logged-in Django staff (the mess owner)"""

	def has_permission(self, request, view):
		user = request.user
		if hasattr(user, 'staff_token'):
			return True
		return bool(user and user.is_authenticated and user.is_staff)
