from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.routers import rebates
import os

app = FastAPI(title="Solar Quote & Rebate API", version="1.0.0")

# Configure CORS - allow frontend URL from environment variable
frontend_url = os.getenv("FRONTEND_URL", "http://localhost:3000")
cors_origins = [
    frontend_url,
    "http://localhost:3000",  # Local development
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rebates.router, prefix="/api", tags=["rebates"])


@app.get("/")
async def root():
    return {"message": "Solar Quote & Rebate API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
