import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import admin_stats
import catalog
import database
import orders
import profiles
import settings
from cart import Cart, CartRegistry
from errors import AuthenticationFailure, Forbidden, ProfileNotFound, StorefrontError, ValidationError
from identity import IDENTITIES, IdentityProvider, log_identity_change
from schemas import (
    CartAddBody,
    CartQuantityBody,
    CustomerInfo,
    LoginBody,
    Profile,
    ProductCreateBody,
    ProductUpdateBody,
    SignupBody,
    VerifyBody,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Fireworks Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

identity_provider = IdentityProvider()
identity_provider.on_identity_changed(log_identity_change)
carts = CartRegistry()
security = HTTPBearer(auto_error=False)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# ----------------------- Session -----------------------
@dataclass
class SessionContext:
    token: str
    session_id: str
    profile: dict
    cart: Cart

    @property
    def uid(self) -> str:
        return self.profile["uid"]

    @property
    def is_admin(self) -> bool:
        return self.profile.get("role") == "admin"


def get_session(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> SessionContext:
    if credentials is None:
        raise AuthenticationFailure("Not authenticated")
    identity = identity_provider.verify(credentials.credentials)
    profile = profiles.get_profile(identity.uid)
    if not profile:
        raise AuthenticationFailure("User not found")
    return SessionContext(
        token=credentials.credentials,
        session_id=identity.jti,
        profile=profile,
        cart=carts.get(identity.jti, identity.expires_at),
    )


def require_admin(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_admin:
        raise Forbidden("Admin only")
    return session


def _auth_response(token: str, profile: dict) -> dict:
    return {"token": token, "user": profile}


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Fireworks Storefront API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.DATABASE_URL else "❌ Not Set",
        "database_name": "✅ Set" if settings.DATABASE_NAME else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = database.list_collections()[:10]
        response["database"] = "✅ Connected & Working"
        response["connection_status"] = "Connected"
    except StorefrontError as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


@app.get("/categories")
def list_categories():
    return catalog.CATEGORIES


# ----------------------- Auth -----------------------
@app.post("/auth/signup")
def signup(body: SignupBody):
    token, profile = profiles.signup(identity_provider, body.email, body.password, body.name, body.phone, body.address)
    return _auth_response(token, profile)


@app.post("/auth/login")
def login(body: LoginBody):
    try:
        token, profile = profiles.login(identity_provider, body.email, body.password)
    except (AuthenticationFailure, ProfileNotFound):
        raise AuthenticationFailure("Invalid credentials")
    return _auth_response(token, profile)


@app.post("/auth/admin/login")
def admin_login(body: LoginBody):
    try:
        token, profile = profiles.admin_login(identity_provider, body.email, body.password)
    except (AuthenticationFailure, ProfileNotFound):
        raise AuthenticationFailure("Invalid admin credentials")
    return _auth_response(token, profile)


@app.post("/auth/logout")
def logout(session: SessionContext = Depends(get_session)):
    identity_provider.sign_out(session.token)
    carts.drop(session.session_id)
    return {"ok": True}


@app.get("/auth/me")
def me(session: SessionContext = Depends(get_session)):
    return session.profile


# ----------------------- Products -----------------------
@app.get("/products")
def list_products(q: Optional[str] = None, category: Optional[str] = None):
    return catalog.list_products(category=category, search=q)


@app.get("/products/featured")
def featured_products():
    return catalog.featured_products()


@app.get("/products/{product_id}")
def get_product(product_id: str):
    return catalog.get_product(product_id)


# ----------------------- Cart -----------------------
@app.get("/cart")
def get_cart(session: SessionContext = Depends(get_session)):
    return session.cart.to_dict()


@app.post("/cart/items")
def add_to_cart(body: CartAddBody, session: SessionContext = Depends(get_session)):
    product = catalog.get_product(body.product_id)
    if not product.get("in_stock", True):
        raise ValidationError("Product is out of stock")
    session.cart.add(product)
    return session.cart.to_dict()


@app.put("/cart/items/{product_id}")
def set_cart_quantity(product_id: str, body: CartQuantityBody, session: SessionContext = Depends(get_session)):
    session.cart.set_quantity(product_id, body.quantity)
    return session.cart.to_dict()


@app.delete("/cart/items/{product_id}")
def remove_from_cart(product_id: str, session: SessionContext = Depends(get_session)):
    session.cart.remove(product_id)
    return session.cart.to_dict()


@app.delete("/cart")
def clear_cart(session: SessionContext = Depends(get_session)):
    session.cart.clear()
    return session.cart.to_dict()


# ----------------------- Orders -----------------------
@app.post("/orders")
def create_order(body: CustomerInfo, session: SessionContext = Depends(get_session)):
    info = body.model_dump()
    # blank delivery fields fall back to the profile's contact details
    for field in ("name", "phone", "address"):
        if not (info.get(field) or "").strip():
            info[field] = session.profile.get(field) or ""
    return orders.place_order(session.profile, session.cart, info)


@app.get("/orders")
def my_orders(session: SessionContext = Depends(get_session)):
    return orders.list_orders_for(session.uid)


@app.get("/orders/{order_id}")
def get_order(order_id: str, session: SessionContext = Depends(get_session)):
    return orders.get_order(order_id, session.profile)


# ----------------------- Admin -----------------------
@app.get("/admin/stats")
def admin_stats_view(_: SessionContext = Depends(require_admin)):
    return admin_stats.compute_stats()


@app.get("/admin/users")
def admin_users(q: Optional[str] = None, _: SessionContext = Depends(require_admin)):
    return admin_stats.list_customers(q)


@app.get("/admin/orders")
def admin_orders(_: SessionContext = Depends(require_admin)):
    return orders.list_all_orders()


@app.post("/admin/orders/{order_id}/verify")
def verify_order(order_id: str, body: VerifyBody, _: SessionContext = Depends(require_admin)):
    return orders.verify(order_id, body.accepted, body.notes)


@app.post("/admin/orders/{order_id}/complete")
def complete_order(order_id: str, _: SessionContext = Depends(require_admin)):
    return orders.complete(order_id)


@app.get("/admin/products")
def admin_products(q: Optional[str] = None, _: SessionContext = Depends(require_admin)):
    return catalog.search_admin_products(q)


@app.post("/admin/products")
def create_product(body: ProductCreateBody, _: SessionContext = Depends(require_admin)):
    return {"id": catalog.create_product(body)}


@app.put("/admin/products/{product_id}")
def update_product(product_id: str, body: ProductUpdateBody, _: SessionContext = Depends(require_admin)):
    return catalog.update_product(product_id, body)


@app.delete("/admin/products/{product_id}")
def delete_product(product_id: str, _: SessionContext = Depends(require_admin)):
    catalog.delete_product(product_id)
    return {"ok": True}


# ----------------------- Seed Demo Data -----------------------
DEMO_ADMIN = {
    "email": "admin@mkathiban.com",
    "password": "admin123",
    "name": "Admin",
}


def _ensure_demo_admin() -> bool:
    if database.count_documents(profiles.USERS, {"role": "admin"}) > 0:
        return False
    # an existing identity was registered by someone who chose its password
    if database.get_documents(IDENTITIES, {"email": DEMO_ADMIN["email"]}, limit=1):
        raise ValidationError("Demo admin email is already registered; create the admin profile manually")
    token = identity_provider.create_account(DEMO_ADMIN["email"], DEMO_ADMIN["password"])
    uid = identity_provider.verify(token).uid
    admin = Profile(uid=uid, email=DEMO_ADMIN["email"], name=DEMO_ADMIN["name"], role="admin")
    database.create_document(profiles.USERS, admin)
    logger.info("Demo admin account ready: %s", DEMO_ADMIN["email"])
    return True


@app.post("/seed")
def seed():
    admin_created = _ensure_demo_admin()
    seeded_products = False
    if database.count_documents(catalog.PRODUCTS) == 0:
        for p in catalog.demo_catalog():
            p = {k: v for k, v in p.items() if k != "id"}
            catalog.create_product(ProductCreateBody(**p))
        seeded_products = True
    return {
        "seeded": seeded_products,
        "admin_created": admin_created,
        "products": database.count_documents(catalog.PRODUCTS),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
