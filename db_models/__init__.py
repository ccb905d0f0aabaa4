# Importing the package registers every model on Base.metadata
from db_models.user import User, UserRole
from db_models.complaint import Complaint, ComplaintComment

__all__ = ["User", "UserRole", "Complaint", "ComplaintComment"]
