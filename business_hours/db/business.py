from bson import ObjectId
from bson.errors import InvalidId
from business_hours.db.mongodb import BUSINESSES, get_database

# Business collection helpers

async def get_business_by_id(business_id: str):
    """
    Get a business document by its ID
    """
    db = await get_database()
    try:
        object_id = ObjectId(business_id)
    except (InvalidId, TypeError):
        # Businesses created outside this service may use string ids
        return await db[BUSINESSES].find_one({"id": business_id})
    return await db[BUSINESSES].find_one({"_id": object_id})
