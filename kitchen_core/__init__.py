"""Kitchen Core 顶层包。

该包提供菜谱生成应用的后端核心，包括配置加载、领域模型
（对话上下文裁剪、消息额度、错误分类）、Provider 适配、
提示词模板、多语言文案、各菜谱 flow 以及 Chef Eva 对话会话。
"""

from kitchen_core.agents.chef_eva_agent import ChefEvaSession, SendOutcome

__all__ = ["ChefEvaSession", "SendOutcome"]
