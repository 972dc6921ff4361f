from enum import StrEnum


class Roles(StrEnum):
    CUSTOMER = "Customer"
    COMPANY = "Company"
    ADMIN = "Admin"
    EMPLOYEE = "Employee"
