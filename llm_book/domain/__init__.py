"""领域层模型与协议。

包含：
- models: Message / ConversationDocument / Cell / NotebookData。
- host: NotebookHost / Prompter / SecretStore 协议。
- cancellation: 调用方传入的取消信号。
- exceptions: 业务异常类型定义。
"""
