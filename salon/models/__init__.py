# Import all models here for easier imports elsewhere
from .user import User, Role, Permission
from .audit import AuditLog
from .customer import Customer, LoyaltyTransaction
from .service import Service, MembershipPlan
from .stylist import Stylist, Staff
from .appointment import Appointment
from .invoice import Invoice, InvoiceLineItem, CustomerMembership
from .incentive import DailySale, IncentiveRule
from .attendance import Attendance, TemporaryExit
from .payroll import SalaryRecord, AdvancePayment, PerformanceRecord
from .procurement import Procurement
