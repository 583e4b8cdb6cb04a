from .request_id import RequestIDMiddleware
from .locale import LocaleMiddleware

__all__ = [
    "RequestIDMiddleware",
    "LocaleMiddleware",
]
