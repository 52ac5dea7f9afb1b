from functools import wraps
from flask import abort
from flask_login import current_user
from kelasku.utils.capabilities import Capability, user_can

def capability_required(*capabilities):
    """
    Decorator untuk membatasi akses berdasarkan tabel kapabilitas.
    Penggunaan: @capability_required(Capability.CREATE_PR)
    Cukup salah satu kapabilitas yang dimiliki.
    """
    def wrapper(fn):
        @wraps(fn)
        def decorated_view(*args, **kwargs):
            if not current_user.is_authenticated:
                return abort(401)
            profile = current_user.profile
            if not any(user_can(profile, cap) for cap in capabilities):
                return abort(403) # Forbidden
            return fn(*args, **kwargs)
        return decorated_view
    return wrapper

def admin_required(fn):
    return capability_required(Capability.MANAGE_USERS)(fn)
