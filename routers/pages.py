import os

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from settings import FREE_PLAN_CREDITS, PRO_PLAN_CREDITS, SUBSCRIPTION_PRICE_CENTS

router = APIRouter(include_in_schema=False)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

NO_STORE = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

# path -> (template, title)
PAGES = {
    "/": ("index.html", "SEO Product Descriptions"),
    "/dashboard": ("dashboard.html", "Dashboard"),
    "/generate": ("generate.html", "Generate"),
    "/products": ("products.html", "Products"),
    "/billing": ("billing.html", "Billing"),
}


def _render(request: Request, name: str, title: str):
    context = {
        "title": title,
        "free_credits": FREE_PLAN_CREDITS,
        "pro_credits": PRO_PLAN_CREDITS,
        "price": f"{SUBSCRIPTION_PRICE_CENTS / 100:.0f}",
    }
    resp = templates.TemplateResponse(request, name, context)
    resp.headers.update(NO_STORE)
    return resp


def _page(name: str, title: str):
    def view(request: Request):
        return _render(request, name, title)
    return view


for _path, (_name, _title) in PAGES.items():
    router.add_api_route(_path, _page(_name, _title), methods=["GET"], response_class=HTMLResponse)
