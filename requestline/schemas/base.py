from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """可直接从ORM对象构建的Schema"""
    model_config = ConfigDict(from_attributes=True)
