from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import utcnow
from errors import InsufficientCreditsError
from models import AnalyticsEvent, Description, Product, User

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# --- Users ---

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()

def get_user_by_stripe_customer(db: Session, customer_id: str) -> Optional[User]:
    return db.query(User).filter(User.stripe_customer_id == customer_id).first()

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def _unique_username(db: Session, base: str) -> str:
    base = (base or "user").split("@")[0] or "user"
    name, i = base, 1
    while db.query(User).filter(User.username == name).first():
        i += 1
        name = f"{base}{i}"
    return name

def create_user(db: Session, email: str, password: str, username: Optional[str] = None,
                first_name: Optional[str] = None, last_name: Optional[str] = None) -> User:
    db_user = User(
        email=email,
        username=username or _unique_username(db, email),
        hashed_password=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

def update_user(db: Session, user: User, **fields: Any) -> User:
    for key, value in fields.items():
        setattr(user, key, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def update_user_stripe_info(db: Session, user: User, customer_id: str, subscription_id: str) -> User:
    return update_user(
        db, user,
        stripe_customer_id=customer_id,
        stripe_subscription_id=subscription_id,
        subscription_status="active",
    )

def update_user_api_credits(db: Session, user: User, credits: Optional[int]) -> User:
    return update_user(db, user, api_credits=credits)

def apply_subscription_transition(db: Session, user: User, transition: Any) -> User:
    """Applies a billing webhook transition. A NULL (unlimited) balance is left alone."""
    fields: Dict[str, Any] = {"subscription_status": transition.status}
    if transition.customer_id and not user.stripe_customer_id:
        fields["stripe_customer_id"] = transition.customer_id
    if transition.clear_subscription:
        fields["stripe_subscription_id"] = None
    elif transition.subscription_id:
        fields["stripe_subscription_id"] = transition.subscription_id

    if user.api_credits is not None:
        if transition.credits is not None:
            fields["api_credits"] = transition.credits
        elif transition.credit_cap is not None and user.api_credits > transition.credit_cap:
            fields["api_credits"] = transition.credit_cap
    return update_user(db, user, **fields)

# --- Credits ---

def reserve_credit(db: Session, user: User) -> Optional[int]:
    """
    Takes one credit with a single conditional UPDATE (floor at 0).
    Returns the remaining balance, None for unlimited users.
    """
    db.refresh(user)
    if user.api_credits is None:
        return None

    updated = (
        db.query(User)
        .filter(User.id == user.id, User.api_credits > 0)
        .update(
            {User.api_credits: User.api_credits - 1, User.updated_at: utcnow()},
            synchronize_session=False,
        )
    )
    db.commit()
    if not updated:
        raise InsufficientCreditsError()
    db.refresh(user)
    return user.api_credits

def refund_credit(db: Session, user: User) -> Optional[int]:
    db.query(User).filter(User.id == user.id, User.api_credits.isnot(None)).update(
        {User.api_credits: User.api_credits + 1, User.updated_at: utcnow()},
        synchronize_session=False,
    )
    db.commit()
    db.refresh(user)
    return user.api_credits

# --- Products ---

def create_product(db: Session, user_id: int, data: Dict[str, Any]) -> Product:
    db_product = Product(**data, user_id=user_id)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product

def get_product(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()

def get_user_products(db: Session, user_id: int, limit: Optional[int] = None, offset: int = 0) -> List[Product]:
    query = (
        db.query(Product)
        .filter(Product.user_id == user_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
    )
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)
    return query.all()

def get_recent_products(db: Session, user_id: int, limit: int) -> List[Product]:
    return get_user_products(db, user_id, limit=limit)

def update_product(db: Session, product: Product, updates: Dict[str, Any]) -> Product:
    for key, value in updates.items():
        setattr(product, key, value)
    product.updated_at = utcnow()
    db.add(product)
    db.commit()
    db.refresh(product)
    return product

def delete_product(db: Session, product: Product) -> None:
    # descriptions cascade through Product.descriptions
    db.delete(product)
    db.commit()

# --- Descriptions ---

def create_description(db: Session, **fields: Any) -> Description:
    db_description = Description(**fields)
    db.add(db_description)
    db.commit()
    db.refresh(db_description)
    return db_description

def get_description(db: Session, description_id: int) -> Optional[Description]:
    return db.query(Description).filter(Description.id == description_id).first()

def get_product_descriptions(db: Session, product_id: int) -> List[Description]:
    return (
        db.query(Description)
        .filter(Description.product_id == product_id)
        .order_by(Description.created_at.desc(), Description.id.desc())
        .all()
    )

def get_user_descriptions(db: Session, user_id: int) -> List[Description]:
    return (
        db.query(Description)
        .filter(Description.user_id == user_id)
        .order_by(Description.created_at.desc(), Description.id.desc())
        .all()
    )

def update_description(db: Session, description: Description, is_active: bool) -> Description:
    description.is_active = is_active
    db.add(description)
    db.commit()
    db.refresh(description)
    return description

def deactivate_product_descriptions(db: Session, product_id: int) -> int:
    count = (
        db.query(Description)
        .filter(Description.product_id == product_id, Description.is_active.is_(True))
        .update({Description.is_active: False}, synchronize_session=False)
    )
    db.commit()
    return count

# --- Analytics ---

def create_analytics(db: Session, user_id: int, event_type: str, event_data: Optional[Dict[str, Any]] = None,
                     product_id: Optional[int] = None, description_id: Optional[int] = None) -> AnalyticsEvent:
    event = AnalyticsEvent(
        user_id=user_id,
        product_id=product_id,
        description_id=description_id,
        event_type=event_type,
        event_data=event_data or {},
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event

def get_user_analytics(db: Session, user_id: int) -> List[AnalyticsEvent]:
    return (
        db.query(AnalyticsEvent)
        .filter(AnalyticsEvent.user_id == user_id)
        .order_by(AnalyticsEvent.timestamp.desc(), AnalyticsEvent.id.desc())
        .all()
    )

def get_dashboard_stats(db: Session, user: User) -> Dict[str, Any]:
    one_month_ago = utcnow() - relativedelta(months=1)

    total_products = (
        db.query(func.count(Product.id)).filter(Product.user_id == user.id).scalar() or 0
    )
    generated_this_month = (
        db.query(func.count(Description.id))
        .filter(Description.user_id == user.id, Description.created_at >= one_month_ago)
        .scalar() or 0
    )
    avg_seo_score = (
        db.query(func.avg(Description.seo_score)).filter(Description.user_id == user.id).scalar()
    )

    db.refresh(user)
    return {
        "total_products": int(total_products),
        "generated_this_month": int(generated_this_month),
        "avg_seo_score": float(avg_seo_score or 0),
        "api_credits": user.api_credits,
    }
