class HabitError(Exception):
    """Base for every failure reported at the request boundary."""
    status_code = 500
    default_message = 'Request failed'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'success': False, 'error': self.message}


class ValidationError(HabitError):
    status_code = 400
    default_message = 'Invalid request'


class DuplicateHabit(ValidationError):
    status_code = 409
    default_message = 'Habit already exists'


class Unauthorized(HabitError):
    status_code = 401
    default_message = 'Not authenticated'


class NotFound(HabitError):
    status_code = 404
    default_message = 'Habit not found'


class StorageError(HabitError):
    status_code = 500
    default_message = 'Storage failure'


ERRORS_BY_STATUS = {
    400: ValidationError,
    401: Unauthorized,
    404: NotFound,
    409: DuplicateHabit,
    500: StorageError,
}


def error_for_status(status_code, message=None):
    return ERRORS_BY_STATUS.get(status_code, HabitError)(message)
