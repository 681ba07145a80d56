# app/schemas/skill_schema.py
from pydantic import BaseModel, ConfigDict

class SkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skill_id: str
    name: str
    category: str

# 任務的技能 (沒有熟練度)
class MissionSkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skill: SkillOut

# 工作者的技能 (含熟練度)
class UserSkillOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    skill: SkillOut
    proficiency: str
