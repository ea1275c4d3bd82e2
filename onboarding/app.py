import logging
import os
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from onboarding.modules.database import connect_to_db, disconnect_from_db, init_db
from onboarding.modules.users.api import pin_router, signup_router, admin_router, login_router, role_router

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_db()
    await init_db()
    yield
    # Shutdown
    await disconnect_from_db()

app = FastAPI(title="Onboarding", version="0.1.0", lifespan=lifespan)

# CORS Configuration
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pin_router)
app.include_router(signup_router)
app.include_router(admin_router)
app.include_router(login_router)
app.include_router(role_router)

@app.get("/")
async def root():
    return {"status": "online", "system": "Onboarding"}
