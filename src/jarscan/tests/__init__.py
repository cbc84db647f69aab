"""jarscan 测试"""
