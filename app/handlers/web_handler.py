from mangum import Mangum
from app.main import app

# AWS Lambda entry point (API Gateway / function URL)
handler = Mangum(app, lifespan="auto")
