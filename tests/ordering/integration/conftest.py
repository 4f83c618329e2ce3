import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from ordering.api import cart_router, delivery_router, order_router
from ordering.delivery.settings_store import get_settings_store
from ordering.domain import ordering
from protean.integrations.fastapi import register_exception_handlers

SETTINGS = {
    "deliveryZones": [
        {
            "name": "Tirupati",
            "zipCodes": ["517501", "517502"],
            "deliveryFeeGrocery": 20,
            "deliveryFeeFood": 25,
            "deliveryTimeEstimate": "25-35 min",
        },
        {"name": "Renigunta", "zipCodes": ["517520"]},
    ],
    "taxPercentage": 5,
    "groceryMinOrderValue": 50,
    "foodMinOrderValue": 100,
}


@pytest.fixture()
def client():
    get_settings_store().set_document(SETTINGS)

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ordering.domain_context():
            return await call_next(request)

    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(delivery_router)
    register_exception_handlers(app)
    return TestClient(app)
