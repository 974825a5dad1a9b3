from .user import User, ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_CHOICES
from .customer import Customer, CustomerAddress
from .price_category import PriceCategory
from .price_item import PriceItem
from .quotation import Quotation, QuotationItem, STATUS_CHOICES
