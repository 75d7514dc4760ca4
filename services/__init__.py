"""
服務層

這個 package 包含純計算邏輯和對外寄送，不負責狀態轉換：
- AssignmentService：抽籤配對邏輯
- MessageService：信件內容
- NotificationService：寄信
"""
