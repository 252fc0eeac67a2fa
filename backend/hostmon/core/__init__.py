"""
核心模块包 (Core Module Package)

hostmon 的基础组件：配置管理、数据库连接、Redis、异常体系、会话令牌与上报鉴权。

Foundational components for hostmon: configuration, database connections, Redis,
the exception hierarchy, session tokens and submission authorization.
"""
