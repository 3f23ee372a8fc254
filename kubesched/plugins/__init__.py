"""调度插件"""
