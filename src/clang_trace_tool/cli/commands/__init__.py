"""
CLI命令模块
"""

from .profile import ProfileCommand
from .dashboard import DashboardCommand

__all__ = ['ProfileCommand', 'DashboardCommand']
