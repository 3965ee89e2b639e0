from pydantic import BaseModel, ConfigDict


class DisplaySchema(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,     # Allows reference="X" or referencia="X"
        serialize_by_alias=True,   # Wire/export names are the display names
    )
