"""
銀行分行設備管理核心

提供設備生命週期管理、狀態機、搜尋過濾與統計分析等業務邏輯。
"""
