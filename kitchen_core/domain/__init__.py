"""领域层模型与算法。

包含：
- models: 统一的 Turn / CompletionRequest / CompletionResult 模型。
- conversation: 单个会话的对话记录。
- context: 历史上下文窗口裁剪。
- quota: Chef Eva 消息额度。
- error_classifier: 失败原因分类。
- exceptions: 业务异常类型定义。
"""
