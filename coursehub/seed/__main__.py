from coursehub.seed.seed_courses import main

main()
