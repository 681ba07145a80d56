# app/services/skill_service.py
# 技能解析：自由輸入的技能名稱 -> 唯一的 skill_id
import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.skill import Skill, DEFAULT_SKILL_CATEGORY
from app.repositories.skill_repo import SkillRepository

logger = logging.getLogger(__name__)

# 熟練度同義字表 (法文 / 英文寫法都接受)
PROFICIENCY_SYNONYMS = {
    'débutant': 'beginner',
    'debutant': 'beginner',
    'beginner': 'beginner',
    'novice': 'beginner',
    'intermédiaire': 'intermediate',
    'intermediaire': 'intermediate',
    'intermediate': 'intermediate',
    'moyen': 'intermediate',
    'avancé': 'advanced',
    'avance': 'advanced',
    'advanced': 'advanced',
    'confirmé': 'advanced',
    'expert': 'expert',
    'expertize': 'expert',
    'senior': 'expert',
    'maitre': 'expert',
    'maître': 'expert',
}

DEFAULT_PROFICIENCY = 'intermediate'


def normalize_proficiency(level: Optional[str]) -> str:
    """
    把自由輸入的熟練度轉成四個標準值之一。
    無法辨識 (包含空字串) 時回傳 'intermediate'，只記錄警告不報錯。
    """
    key = (level or "").strip().lower()
    normalized = PROFICIENCY_SYNONYMS.get(key)
    if normalized is None:
        logger.warning(f"無法辨識的熟練度 '{level}'，改用預設值 {DEFAULT_PROFICIENCY}")
        return DEFAULT_PROFICIENCY
    return normalized


class SkillService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = SkillRepository(db)

    async def list_skills(self) -> List[Skill]:
        return await self.repo.get_all_skills()

    async def resolve(self, raw_name: str, default_category: str = DEFAULT_SKILL_CATEGORY) -> str:
        """
        取得技能 ID，不存在就建立 (冪等)。

        - 名稱比對：trim + 不分大小寫
        - 建立動作包在 SAVEPOINT 中：若同時有別的請求搶先建立 (唯一鍵衝突)，
          只回滾這個 SAVEPOINT，再查一次拿到既有的 ID
        """
        name = (raw_name or "").strip()
        if not name:
            raise ValidationError("技能名稱不可為空白")

        existing = await self.repo.get_skill_by_name(name)
        if existing:
            return existing.skill_id

        try:
            async with self.db.begin_nested():
                skill = await self.repo.create_skill(name, default_category)
            logger.info(f"建立新技能: {name}")
            return skill.skill_id
        except IntegrityError:
            logger.info(f"技能 '{name}' 已被同時建立，改用既有資料")
            existing = await self.repo.get_skill_by_name(name)
            if existing is None:
                raise
            return existing.skill_id
