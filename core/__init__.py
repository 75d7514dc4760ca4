"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- 狀態機：集中管理 Game 的狀態轉換
- Manager：管理 Game 的生命週期（建立、開始）
- Store：Game 和 Participant 的持久化
- Locks：並發控制工具
"""
