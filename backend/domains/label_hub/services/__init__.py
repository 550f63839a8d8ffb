"""服务层：一致性引擎"""

from .label_service import LabelService, get_label_service, reset_label_service

__all__ = ['LabelService', 'get_label_service', 'reset_label_service']
