from .dto import BootstrapIn, LogoutIn, RefreshIn, SessionOut, UserOut
from .service import AuthService

__all__ = ["AuthService", "BootstrapIn", "RefreshIn", "LogoutIn", "SessionOut", "UserOut"]
