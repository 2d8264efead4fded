from motor.motor_asyncio import AsyncIOMotorClient

from config import settings

# Create async client
client = AsyncIOMotorClient(settings.MONGO_URI)
db = client[settings.MONGO_DATABASE]

# Collections
universities_collection = db["universities"]
recommendations_collection = db["recommendations"]
