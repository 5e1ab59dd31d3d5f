# madarij/services/errors.py


class NotificationError(Exception):
    """Error de dominio con mensaje listo para mostrar (árabe)."""
    status_code = 400
    message = "حدث خطأ في معالجة الإشعار"

    def __init__(self, message: str = None):
        if message:
            self.message = message
        super().__init__(self.message)


class NotificationNotFound(NotificationError):
    # también cuando la notificación es de otro usuario
    status_code = 404
    message = "الإشعار غير موجود"


class InvalidNotificationId(NotificationError):
    status_code = 400
    message = "معرف الإشعار غير صالح"
