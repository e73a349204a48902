# instrument_scheduler/policy.py
# Access decisions. Pure functions of the user and reservation, no lookups.


def can_create(user) -> bool:
    return bool(user.is_approved)


def can_cancel(user, reservation) -> bool:
    return user.id == reservation.user_id or bool(user.is_admin)


def can_moderate(user) -> bool:
    return bool(user.is_admin)
