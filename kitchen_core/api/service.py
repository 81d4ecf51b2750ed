"""对外 API 服务模块。

提供简化的函数接口供上层应用（Web 路由、CLI 等）调用，入参与返回值都是
camelCase 键的普通 dict。
"""

from typing import Any, Dict, Optional

from kitchen_core.agents.chef_eva_agent import ChefEvaSession
from kitchen_core.config.settings import settings
from kitchen_core.domain.quota import QuotaTracker
from kitchen_core.flows.base import parse_input
from kitchen_core.flows.explain_instructions import ExplainRequest, explain_instructions as _explain
from kitchen_core.flows.generate_pro_menu import MenuRequest, generate_pro_menu as _generate_pro_menu
from kitchen_core.flows.generate_recipe import RecipeRequest, generate_recipe as _generate_recipe
from kitchen_core.flows.improve_instruction import ImproveRequest, improve_instruction as _improve
from kitchen_core.flows.refine_recipe import RefineRequest, refine_recipe as _refine
from kitchen_core.infrastructure.logging.logger import logger
from kitchen_core.infrastructure.storage.json_store import JsonKeyValueStore
from kitchen_core.providers import create_provider
from kitchen_core.providers.base import ProviderClient


_provider: Optional[ProviderClient] = None
_store: Optional[JsonKeyValueStore] = None
_session: Optional[ChefEvaSession] = None


def get_default_provider() -> ProviderClient:
    """获取默认 Provider 实例（单例）。"""
    global _provider
    if _provider is None:
        _provider = create_provider()
    return _provider


def get_default_session() -> ChefEvaSession:
    """获取默认的 Chef Eva 会话（单例），额度保存在本地 JSON 存储中。"""
    global _store, _session
    if _store is None:
        _store = JsonKeyValueStore(root=settings.storage_root)
    if _session is None:
        quota = QuotaTracker(_store, key=settings.chat_quota_key, maximum=settings.chat_quota_max)
        _session = ChefEvaSession(provider_client=get_default_provider(), quota=quota)
    return _session


def generate_recipe(payload: Dict[str, Any]) -> Dict[str, Any]:
    """根据食材生成菜谱。

    Args:
        payload: {"ingredients": "...", "preferredDishType"?: "...", "language"?: "..."}

    Returns:
        recipeName / providedIngredients / additionalIngredients / instructions /
        alternativeDishTypes / notes
    """
    request = parse_input(RecipeRequest, payload)
    return _generate_recipe(get_default_provider(), request).to_dict()


def refine_recipe(payload: Dict[str, Any]) -> Dict[str, Any]:
    request = parse_input(RefineRequest, payload)
    return _refine(get_default_provider(), request).to_dict()


def generate_pro_menu(payload: Dict[str, Any]) -> Dict[str, Any]:
    request = parse_input(MenuRequest, payload)
    return _generate_pro_menu(get_default_provider(), request).to_dict()


def explain_instructions(payload: Dict[str, Any]) -> Dict[str, Any]:
    request = parse_input(ExplainRequest, payload)
    return _explain(get_default_provider(), request).to_dict()


def improve_recipe_instruction(payload: Dict[str, Any]) -> Dict[str, Any]:
    """改写菜谱步骤。失败时记录日志并原样抛出 domain.exceptions 中的异常。"""
    try:
        request = parse_input(ImproveRequest, payload)
        return _improve(get_default_provider(), request).to_dict()
    except Exception as e:
        logger.error(f"Improve instruction failed: {e}", extra={"extra": {
            "flow": "improve_instruction",
            "error": str(e),
        }})
        raise


def chat_with_eva(
    text: Optional[str] = None,
    image: Optional[str] = None,
    language: Optional[str] = None,
) -> Dict[str, Any]:
    """向 Chef Eva 发送一条消息。

    Args:
        text: 消息文本（可选）
        image: JPEG/PNG data URI（可选）
        language: 回复语言名称，如 "Spanish"；与当前会话语言不同时会重置对话

    Returns:
        包含 status、response、errorKind、remainingQuota 的字典
    """
    session = get_default_session()
    if language:
        session.set_language(language)
    outcome = session.send(text=text, image_data_uri=image)
    return {
        "status": outcome.status,
        "response": outcome.message,
        "errorKind": outcome.error.kind.value if outcome.error else None,
        "remainingQuota": outcome.remaining_quota,
    }


def reset_chat() -> Dict[str, Any]:
    """重置对话，额度不变。"""
    session = get_default_session()
    session.reset()
    return {"turns": len(session.turns), "remainingQuota": session.remaining_quota}


def get_quota() -> Dict[str, Any]:
    session = get_default_session()
    return {
        "remaining": session.remaining_quota,
        "maximum": settings.chat_quota_max,
        "state": session.quota_state.value,
    }
