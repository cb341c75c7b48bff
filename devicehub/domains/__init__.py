"""
Domain Layer

包含應用程序的核心領域模型和業務邏輯，按功能領域分為多個子模塊：

- common: 各領域共用的基礎模型與錯誤分類
- device: 分行設備的生命週期、狀態機、搜尋與統計
"""
