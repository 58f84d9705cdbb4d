"""TaskJar -- 任务 XP Jar 与完成率分析"""
