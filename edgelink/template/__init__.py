from edgelink.template.associator import TemplateAssociator
from edgelink.template.role import patch_execution_role

__all__ = ["TemplateAssociator", "patch_execution_role"]
