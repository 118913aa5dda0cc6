from storefront.models.tenant import Tenant
from storefront.models.user import User
from storefront.models.user_tenant import UserTenant
from storefront.models.category import Category, SubCategory
from storefront.models.brand import Brand
from storefront.models.personality import Personality
from storefront.models.product_item import ProductItem, item_personalities, item_sub_categories
from storefront.models.tax import Tax
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.admin_audit_log import AdminAuditLog
from storefront.models.promo_code import PromoCode
from storefront.models.category_template import CategoryTemplate, TemplateCategory, TemplateSubCategory
