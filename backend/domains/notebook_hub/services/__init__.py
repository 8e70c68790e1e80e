"""
服务层：认证、笔记本 / 笔记、锁定密码
"""

from .auth_service import AuthService
from .lock_service import LockService, LockVerification
from .notebook_service import Mutation, NotebookService, parse_section

__all__ = [
    'AuthService',
    'LockService',
    'LockVerification',
    'Mutation',
    'NotebookService',
    'parse_section',
]
