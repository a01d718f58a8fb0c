from flask import current_app
from flask_login import UserMixin
from kartboard import bcrypt


ADMIN_HEADER = 'X-Admin-Code'


def admin_code_hash(code):
    """Hash the configured admin passcode, or None when admin access is disabled."""
    if not code:
        return None
    return bcrypt.generate_password_hash(code).decode('utf-8')


def check_admin_code(code) -> bool:
    pw_hash = current_app.extensions.get('admin_code_hash')
    if not pw_hash or not code:
        return False
    return bcrypt.check_password_hash(pw_hash, code)


class AdminUser(UserMixin):
    """Request-scoped identity for callers presenting the admin passcode."""

    id = 'admin'

    @classmethod
    def from_request(cls, request):
        if check_admin_code(request.headers.get(ADMIN_HEADER)):
            return cls()
        return None
