"""
hostmon 路由模块包 (hostmon Router Module Package)

- monitor.py: 主机指标上报与时间范围查询
- host_tokens.py: 主机静态令牌发放与列表

所有路由在 main.py 中通过 app.include_router() 统一注册，使用 /api/v1/ 前缀。
"""
