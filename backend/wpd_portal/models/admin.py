from sqlalchemy import Column, String

from wpd_portal.db.base import Base, BaseModel


class Admin(Base, BaseModel):
    __tablename__ = "admins"

    email = Column(String(254), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<Admin {self.email}>"
