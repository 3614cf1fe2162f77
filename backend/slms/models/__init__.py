from .staff import StaffMember
from .sequences import ReferenceSequence
from .materials import MaterialRequest, MaterialRequestEvent
from .facilities import ClassroomInventory, ClassroomInventoryItem, SafetyInspection, SafetyCheck

__all__ = [
    'StaffMember',
    'ReferenceSequence',
    'MaterialRequest', 'MaterialRequestEvent',
    'ClassroomInventory', 'ClassroomInventoryItem', 'SafetyInspection', 'SafetyCheck',
]
